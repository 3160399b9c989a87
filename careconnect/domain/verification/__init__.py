"""Verification domain - four-stage provider vetting and admin review"""
