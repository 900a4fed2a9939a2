"""Services composing the source package workflow."""
