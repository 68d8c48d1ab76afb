from sales_rollup import cli

cli.app()
