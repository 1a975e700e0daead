"""Service catalog domain - named services and their list prices"""
