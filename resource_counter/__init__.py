"""AWS Resource Counter.

Counts the resources an AWS account owns across EC2, EBS, RDS, S3, Lambda,
ECS, Lightsail, EKS and IAM, optionally across every enabled region.
"""

__version__ = "1.0.0"
