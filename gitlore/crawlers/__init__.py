"""Crawlers"""
