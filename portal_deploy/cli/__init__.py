"""Command line interface for portal-deploy"""
