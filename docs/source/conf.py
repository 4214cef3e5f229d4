import os
import sys
from datetime import date

sys.path.insert(0, os.path.abspath("../.."))

import ktbeacon  # noqa: E402

project = "ktbeacon"
author = "ktbeacon Contributors"
copyright = f"{date.today().year}, ktbeacon Contributors"

version = ktbeacon.__version__
release = ktbeacon.__version__

extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.napoleon",
]

autodoc_member_order = "bysource"
autosummary_generate = True

templates_path = ["_templates"]
exclude_patterns: list[str] = []
source_suffix = [".rst", ".md"]
master_doc = "index"
language = "en"

html_theme = "sphinx_book_theme"
html_title = f"ktbeacon {version} Documentation"
html_theme_options = {
    "show_toc_level": 2,
}
