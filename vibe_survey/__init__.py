"""
vibe_survey
===========

Minerva Identity Survey: sign in, answer a sampled set of questions from the
CSV bank, get a vibe from the tally of answer groups.

app.py is the Streamlit entry point; everything else is plain Python.
"""

__version__ = "0.1.0"
