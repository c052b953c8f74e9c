"""Parse SQL model files and their frontmatter, resolve table names to models, and evaluate template expressions."""

__version__ = "0.1.0"