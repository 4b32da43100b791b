"""
Hybrid retrieval: vector + full-text search fused by reciprocal rank.

The Lambda entry point lives in ``lambda_handler``; import it directly so
that loading the fusion and filter helpers does not pull in the AWS and
MongoDB clients.
"""
