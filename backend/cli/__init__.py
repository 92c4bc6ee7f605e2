"""Agent orchestration CLI"""
