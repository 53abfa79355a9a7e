"""betdesk: wager ticket tracking backoffice."""
