"""Elevator allocation algorithms"""

from .fixed_car import FixedCarStrategy

__all__ = ['FixedCarStrategy']
