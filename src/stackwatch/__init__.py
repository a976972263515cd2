"""Watch CloudFormation stack operations until they settle."""

__version__ = "0.1.0"
