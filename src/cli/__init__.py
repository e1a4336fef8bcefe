"""Command-line tools for studyrag.

- ``python -m src.cli ingest`` — ingest a PDF, image or audio file
- ``python -m src.cli query`` — retrieve chunks for a question
- ``python -m src.cli chunk`` — run the chunker over a text file
- ``python -m src.cli list`` / ``delete`` — manage stored documents

The CLI builds the same providers and services as the web server (see
``src.main.build_components``) but runs each command to completion.
"""
