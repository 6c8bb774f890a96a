"""Utility modules for the AWS Resource Counter."""
