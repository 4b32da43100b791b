"""
Document ingestion: S3 lifecycle events -> chunks and inventory.

The Lambda entry point lives in ``lambda_handler``; import it directly so
that loading the models does not pull in the AWS and MongoDB clients.
"""
