"""
Backlink Renamer

Rewrites every wiki-link pointing at an old document title so it points at a
new one, submitting the edits through the wiki's HTTP API while a background
monitor watches a discussion page for a stop signal.
"""

# Logging is configured at app entry point via backlink_renamer/logging_utils.py
# No need to configure logging here.

__version__ = "0.1.0"
__author__ = "Backlink Renamer"
__description__ = "Backlink rename automation for the seed wiki API"
