"""Clinician schedule items: approval workflow and calendar views."""
