"""Shell building blocks: builtins, environment, redirections and pipelines."""

__version__ = "0.1.0"