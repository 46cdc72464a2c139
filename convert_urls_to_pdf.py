#!/usr/bin/env python3
"""
Convert web pages to PDF (see ``--help``).

MIT License - Copyright (c) 2025 URL to PDF Converter
"""

from url_to_pdf.converter import main


if __name__ == "__main__":
    main()
