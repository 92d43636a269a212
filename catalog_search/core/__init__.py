"""Configuration, logging, database and error primitives"""
