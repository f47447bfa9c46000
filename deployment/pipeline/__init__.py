"""Install, test and deploy pipeline with SSH-based server reconciliation."""
