"""sqlcourier: run SQL queries and deliver the results to Slack or webhooks."""
