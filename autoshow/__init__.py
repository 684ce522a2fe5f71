"""
Core package for the show-note pipeline.

This package contains the components used by the HTTP entrypoint to resolve
request options, transcribe audio with one of several services, format the
transcript, generate show notes with a language model, and clean up the
temporary files a job leaves behind.
"""
