# Sphinx configuration file

import os
import sys
sys.path.insert(0, os.path.abspath('../src'))

from library_rules_workflow import __version__

project = 'Library Rules Workflow'
copyright = '2026, Library Rules Workflow contributors'
author = 'Library Rules Workflow contributors'
release = __version__
version = '.'.join(__version__.split('.')[:2])

root_doc = 'index'

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.intersphinx',
    'sphinx.ext.napoleon',
    'sphinx.ext.viewcode',
    'sphinx_autodoc_typehints',
]

exclude_patterns = ['_build', 'Thumbs.db', '.DS_Store']

html_theme = 'sphinx_rtd_theme'

autodoc_default_options = {
    'members': True,
    'member-order': 'bysource',
    'undoc-members': True,
}

intersphinx_mapping = {
    'python': ('https://docs.python.org/3', None),
    'pydantic': ('https://docs.pydantic.dev/latest', None),
}

napoleon_google_docstring = True
