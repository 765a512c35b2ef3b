"""Core auction logic: execution environment, auctions and the factory"""
