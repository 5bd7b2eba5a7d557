"""Insight provider boundary (generative text)"""
