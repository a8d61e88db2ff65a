"""Scheduler routing tests"""
