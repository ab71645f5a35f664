__app_name__ = "sadfiles"
__version__ = "1.0.0"
