# Empty file to make coursehub a package
