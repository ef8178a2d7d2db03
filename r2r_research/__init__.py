"""r2r-research: hybrid search client for tiered R2R documentation collections.

Collections are organised in three tiers:
- universal: cross-project knowledge
- tech-stack: language, framework, database and tool references
- project: a specific codebase
"""

__version__ = "0.1.0"
