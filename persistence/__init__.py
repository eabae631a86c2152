"""
Persistence layer for crawl output.

This package provides the record sink the crawler writes finished
business records to.
"""

from .dataset import JSONLDatasetSink, RecordSink

__all__ = ['JSONLDatasetSink', 'RecordSink']
