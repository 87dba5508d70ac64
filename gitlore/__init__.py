"""GitHub repository enrichment pipeline"""
