"""Conversation state: activities, persisted dialog stacks, state stores."""
