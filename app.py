# -*- coding: utf-8 -*-
"""
Prompt Pipeline Canvas

Terminal entry point: starts the interactive pipeline session.

Usage:
    python app.py            # sample tabs loaded
    python app.py --empty    # start with no tabs
    python app.py -v         # verbose logging
"""

from src.pipeline_session.session import main


if __name__ == "__main__":
    main()
