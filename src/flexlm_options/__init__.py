"""
flexlm-options — FlexLM license file and options file toolkit.

File: src/flexlm_options/__init__.py

Purpose
- Package root for parsing MathWorks FlexLM license files, parsing and
  re-exporting options files, validating one against the other and
  simulating seat allocation.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
