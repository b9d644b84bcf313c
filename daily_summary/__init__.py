"""Daily activity summary from GitHub pull requests and Linear tickets."""
