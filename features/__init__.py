"""
Features package — each sub-package encapsulates one analysis stage.

Convention:
  features/<feature_name>/
    __init__.py      — public API re-exports
    models.py        — data models specific to this feature
    prompts.py       — LLM prompt builder and response parser (if applicable)
    ...              — the stage's logic modules
"""
