"""Recommendation engine for TeaRec.

Builds the user rating matrix from orders, trains the Slope-One and
popularity recommenders, and synchronizes the training cutoff with peer
replicas.
"""
