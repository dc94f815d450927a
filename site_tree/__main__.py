from site_tree.cli import cli

if __name__ == "__main__":
    cli(prog_name="site-tree")
