"""
Boundary layer: adapters for MongoDB, Bedrock and AWS services.
"""
