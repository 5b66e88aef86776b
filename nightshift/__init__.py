"""
Night Shift - Narrative clinical-judgment simulator

The player is a nurse responding to a deteriorating virtual patient.
A generative service writes the scenario; this package provides:
- The turn loop and single-flight service conversation
- Decision board (bowtie) selection state
- Simulation state reduction and the message log
- REST API and terminal front end
"""

__version__ = "0.1.0"
