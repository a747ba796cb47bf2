"""Dashboard service data contract"""
