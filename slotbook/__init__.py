"""Slotbook - last-minute slot reservation and deposit reconciliation API"""
