#!/usr/bin/env python3
"""
fsquery entry point
"""
from fsquery.cli import cli

if __name__ == '__main__':
    cli()
