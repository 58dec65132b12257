"""
roomchat - multi-room chat client core

Room discovery, password-gated joining and realtime message synchronization
on top of a relational store and a live change feed.
"""

__version__ = "0.1.0"
