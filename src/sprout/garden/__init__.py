"""The garden: a gamified recycling and gardening tracker built on sprout.

    from sprout.garden.app import create_app
"""
