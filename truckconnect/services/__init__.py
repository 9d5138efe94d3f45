"""
Business services. Each raises TruckConnectError subclasses on rule
violations and leaves HTTP concerns to the blueprints.
"""
