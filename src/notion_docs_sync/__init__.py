"""Mirror a folder of Markdown documents as child pages of a Notion page."""

__version__ = "1.0.0"
