"""Command line diagnostics for modelcitizen blueprints."""
