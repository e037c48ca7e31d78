# stocky/cli/commands/__init__.py
