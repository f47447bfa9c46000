"""
Deployment module for the tasklist app.

- AWS infrastructure declaration (one EC2 instance, one S3 bucket)
- Install/test/deploy pipeline and server reconciliation over SSH
"""
