"""Booking domain - care requests, job lifecycle, ratings and earnings"""
