"""Check-in persistence collaborators"""
