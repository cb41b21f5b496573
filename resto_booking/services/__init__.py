"""Booking domain services: availability, table assignment, lifecycle and calendar views"""
