"""
mlboard — ML pipeline board compiler.

Turns a graph of typed training stages (Data, Transform, Split, Model, Loss,
Optimizer, Metric, Trainer, Composite) into a standalone PyTorch training
script.
"""

__version__ = "0.1.0"
