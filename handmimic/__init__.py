"""HandMimic - retarget tracked human hands onto robot hand models"""

__version__ = "0.1.0"
