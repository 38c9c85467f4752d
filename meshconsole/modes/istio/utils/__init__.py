"""
Istio Utilities

- IstioParser: conversion of raw Istio resources into configuration models
  and local validation
"""

from .istio_parser import IstioParser

__all__ = ["IstioParser"]
