"""
Hybrid-search knowledge base.

Ingests documents dropped into S3 into MongoDB chunks and serves
reciprocal-rank-fusion queries to a Bedrock agent.
"""
