"""FastAPI application module for TeaRec.

Contains the application factory, the train and recommend routes, error
mapping, logging and metrics for the recommender service.
"""
