"""
Microdata Template - declarative HTML templating through microdata attributes

Binds mappings, sequences and collections to repeating HTML fragments marked
with ``itemscope``/``itemref``/``hidden``, resolving ``{{ ... }}`` tokens in
text nodes and attribute values.
"""

__version__ = "1.0.0"

from microdata_template.core.template.engine import MicrodataTemplate

__all__ = ["__version__", "MicrodataTemplate"]
