"""lotd-library - book locations from the Legacy of the Dragonborn wiki.

Crawls the three library floor pages of the Legacy of the Dragonborn
Fandom wiki and emits every book with the places it can be found.
"""

__version__ = "0.1.0"
__author__ = "lotd-library Team"
