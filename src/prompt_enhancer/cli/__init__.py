"""Command line interface for prompt-enhancer."""
