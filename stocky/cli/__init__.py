# stocky/cli/__init__.py
