"""Command line interface for the OpenADR overlay."""
