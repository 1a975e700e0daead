"""Chairbook - appointment booking backend for salons and barbershops"""
