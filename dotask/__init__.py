"""DoTask client — GraphQL transport, state stores and auth glue."""
