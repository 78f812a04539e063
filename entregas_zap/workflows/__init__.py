"""Use cases over a dashboard session"""
