"""GitHub App that backports and forward-ports merged pull requests."""
