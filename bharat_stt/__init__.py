"""HTTP entrypoint for the Bharat speech-to-text backend."""
