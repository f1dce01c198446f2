"""kiro-agents command line interface."""
