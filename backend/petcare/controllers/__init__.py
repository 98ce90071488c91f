# Controllers package - Flask blueprints
