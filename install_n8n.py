#!/usr/bin/env python3
# filename: install_n8n.py
# -*- coding: utf-8 -*-
"""
Entry point for the n8n server provisioner.
"""

import sys

from provisioner.main import main

if __name__ == "__main__":
    sys.exit(main())
