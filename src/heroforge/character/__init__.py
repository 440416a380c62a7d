"""Creature capabilities: abilities, skills, hit points, scale values and proficiency."""
