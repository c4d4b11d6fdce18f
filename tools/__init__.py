"""Mailbox tools, dispatch and result formatting for the email client agent."""
