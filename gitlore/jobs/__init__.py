"""Command-line jobs"""
